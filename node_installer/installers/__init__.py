# node_installer/installers/__init__.py
"""Distribution-specific installers. Each module registers one installer."""
