"""Build-definition templating and the bundled override templates."""
