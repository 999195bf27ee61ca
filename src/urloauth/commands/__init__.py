"""Built-in ``urloauth`` sub-commands."""
