# node_installer/__init__.py
"""Host probing, version resolution and OS-specific installers for a Kubernetes node."""
