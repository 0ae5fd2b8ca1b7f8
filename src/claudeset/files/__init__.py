"""Candidate files of a snapshot: discovery, ``@`` reference expansion, selection.

Scopes:
    project    CLAUDE.md, CLAUDE.local.md, .claude/**/*.md under the current directory
    user       ~/.claude/CLAUDE.md, ~/.claude/commands/**/*.md
"""
