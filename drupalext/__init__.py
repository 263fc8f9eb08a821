"""Drupal project detection and language server supervision for editors."""

__version__ = "0.1.0"
