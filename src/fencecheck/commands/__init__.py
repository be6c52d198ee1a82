"""Auxiliary commands: bulk annotation and display rendering."""
