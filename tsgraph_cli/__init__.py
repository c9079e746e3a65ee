"""tsgraph: TypeScript import graphs and syntax attention reports."""

__version__ = "0.1.0"
