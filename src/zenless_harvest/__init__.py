# ABOUTME: zenless-harvest package root
# ABOUTME: Batch harvesting of Zenless Zone Zero wiki entries into validated records and icon assets

__version__ = "0.1.0"
