import argparse
import logging
import uvicorn
from jsonds.api.app import create_app
from jsonds.config import Settings, configure_logging

logger = logging.getLogger("jsonds")

def main(argv=None):
    ap = argparse.ArgumentParser(description="Mock JSON data source for dashboards")
    ap.add_argument("--host", default=None, help="Listen address (default: $JSONDS_HOST or 0.0.0.0)")
    ap.add_argument("--port", type=int, default=None, help="Listen port (default: $JSONDS_PORT or 8080)")
    ap.add_argument("--seed-count", type=int, default=None, help="Events backfilled at startup")
    ap.add_argument("--generate-period", type=float, default=None, help="Seconds between generated events")
    ap.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    args = ap.parse_args(argv)

    settings = Settings.from_env(
        host=args.host,
        port=args.port,
        seed_count=args.seed_count,
        generate_period_s=args.generate_period,
        log_level=args.log_level,
    )
    configure_logging(settings.log_level)
    logger.info("Serving on http://%s:%d (seed=%d, period=%.1fs)",
                settings.host, settings.port, settings.seed_count, settings.generate_period_s)

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port,
                log_level=settings.log_level.lower())

if __name__ == "__main__":
    main()
