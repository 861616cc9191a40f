"""webscaffold -- front-end web project scaffolder."""

__version__ = "0.1.0"
