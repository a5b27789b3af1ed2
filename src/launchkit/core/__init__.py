"""Download, install and uninstall engine."""
