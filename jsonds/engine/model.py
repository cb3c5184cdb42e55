from dataclasses import dataclass

EVENT_TAGS = "atag btag ctag"

@dataclass(frozen=True)
class Event:
    """One synthetic annotation event."""
    index: int
    timestamp: int  # epoch millis
    title: str
    text: str
    tags: str = EVENT_TAGS

def make_event(timestamp_ms: int, index: int) -> Event:
    """Build the standard synthetic event shared by the seeder and the generator."""
    return Event(
        index=index,
        timestamp=timestamp_ms,
        title=f"event {index:04d}",
        text=f"text about the event {index:04d}",
    )
