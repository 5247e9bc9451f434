"""
Command-line interface: `note-mirror`.
"""
