"""Starter .hunkstage.toml template."""

DEFAULT_TOML = """\
# hunkstage configuration
version = "1.0"

[git]
executable = "git"
timeout = 30              # seconds; git add -p waits forever on an unanswered prompt

[staging]
mode = "interactive"      # interactive | scripted
# prompt_padding = 10     # scripted mode: extra "n" answers after the known hunks

[diff]
find_renames = false
context = 3               # must match the context git add -p uses (default 3)

[output]
format = "terminal"       # terminal | json
show_line_numbers = true

[logging]
level = "WARNING"         # DEBUG | INFO | WARNING | ERROR | CRITICAL
format = "console"        # console | json
"""
