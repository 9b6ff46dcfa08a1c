"""
Callback bridge page

Target of the provider redirect. Supabase places the session token in the URL
fragment, which never reaches the server; `static/js/callback.js` reads it,
posts it to `/callback/validate` and forwards the outcome to `redirect_uri`.
"""

from typing import Optional

from .base import Component


class CallbackPage(Component):
    def __init__(self, redirect_uri: str = "", site: Optional[str] = None):
        self.redirect_uri = redirect_uri or ""
        self.site = site or ""

    def render(self) -> str:
        config = self.json_data_block(
            "callback-config",
            {"redirectUri": self.redirect_uri, "site": self.site},
        )
        return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Authenticating...</title>
  <link rel="stylesheet" href="/static/css/auth.css">
  {config}
  <script src="/static/js/handoff.js" defer></script>
  <script src="/static/js/callback.js" defer></script>
</head>
<body>
  <div class="container">
    <p id="status" class="loading" role="status">Authenticating...</p>
  </div>
</body>
</html>"""
