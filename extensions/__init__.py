"""Built-in extensions, activated before any installed one."""
