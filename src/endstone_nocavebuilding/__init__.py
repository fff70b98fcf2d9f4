# endstone_nocavebuilding/__init__.py
# The plugin class lives in index_plugin.py (needs the endstone runtime).
# Everything else here imports without a server.
