"""Filter package initialiser (source of truth).

Rebuild rules:
- Keep this file lightweight; do not import concrete filters here so imports of
  ``vsxroute.filters`` remain side-effect free.
- Concrete filter modules (``request_contains``, ``extension_id``)
  self-register their factories when imported elsewhere (see
  ``vsxroute.__init__`` for eager imports).
"""

__all__: list[str] = []
