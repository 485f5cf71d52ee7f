"""Git Control - git and GitHub workflow tools"""

__version__ = "0.1.0"
