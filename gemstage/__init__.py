"""gemstage — install a Bundler project's gem closure into a target directory."""

__version__ = "0.1.0"
