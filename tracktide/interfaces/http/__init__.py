"""HTTP interface: Flask blueprints."""
