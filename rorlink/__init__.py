"""Link federation IdPs to ROR organizations."""

__version__ = "0.1.0"
