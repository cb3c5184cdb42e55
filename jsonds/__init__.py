"""Mock JSON data source for dashboard front-ends."""
