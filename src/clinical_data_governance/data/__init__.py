"""Bundled policy catalog resources."""
