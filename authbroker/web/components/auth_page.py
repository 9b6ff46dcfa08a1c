"""
Sign-in page for the redirect flow

Renders the branded sign-in surface (Google OAuth, email/password, magic
link). The page itself never sees credentials: `static/js/auth.js` drives
supabase-js, posts the resulting session token to `/callback/validate` and
hands the outcome to `redirect_uri` in the URL fragment.
"""

from typing import Optional

from authbroker.identity_access.domain import SiteBranding

from .base import Component


SUPABASE_JS_SRC = "https://unpkg.com/@supabase/supabase-js@2"

_GOOGLE_ICON = """<svg viewBox="0 0 24 24" aria-hidden="true">
        <path fill="#4285F4" d="M22.56 12.25c0-.78-.07-1.53-.2-2.25H12v4.26h5.92c-.26 1.37-1.04 2.53-2.21 3.31v2.77h3.57c2.08-1.92 3.28-4.74 3.28-8.09z"/>
        <path fill="#34A853" d="M12 23c2.97 0 5.46-.98 7.28-2.66l-3.57-2.77c-.98.66-2.23 1.06-3.71 1.06-2.86 0-5.29-1.93-6.16-4.53H2.18v2.84C3.99 20.53 7.7 23 12 23z"/>
        <path fill="#FBBC05" d="M5.84 14.09c-.22-.66-.35-1.36-.35-2.09s.13-1.43.35-2.09V7.07H2.18C1.43 8.55 1 10.22 1 12s.43 3.45 1.18 4.93l2.85-2.22.81-.62z"/>
        <path fill="#EA4335" d="M12 5.38c1.62 0 3.06.56 4.21 1.64l3.15-3.15C17.45 2.09 14.97 1 12 1 7.7 1 3.99 3.47 2.18 7.07l3.66 2.84c.87-2.6 3.3-4.53 6.16-4.53z"/>
      </svg>"""


class AuthPage(Component):
    """Complete sign-in document for one site's branding"""

    def __init__(
        self,
        branding: SiteBranding,
        supabase_url: str,
        supabase_anon_key: str,
        redirect_uri: str = "",
        site: Optional[str] = None,
    ):
        """
        Args:
            branding: Cosmetic attributes (logo, name, accent color)
            supabase_url: Browser-facing Supabase URL for supabase-js
            supabase_anon_key: Public anon key for supabase-js
            redirect_uri: Destination receiving the fragment handoff (may be empty)
            site: Site slug carried to the callback and the validation call
        """
        self.branding = branding
        self.supabase_url = supabase_url
        self.supabase_anon_key = supabase_anon_key
        self.redirect_uri = redirect_uri or ""
        self.site = site or ""

    def render(self) -> str:
        brand = self.escape(self.branding.brand_name)
        config = self.json_data_block(
            "auth-config",
            {
                "supabaseUrl": self.supabase_url,
                "supabaseAnonKey": self.supabase_anon_key,
                "redirectUri": self.redirect_uri,
                "site": self.site,
                "primaryColor": self.branding.primary_color,
            },
        )
        return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{brand} - Sign In</title>
  <link rel="stylesheet" href="/static/css/auth.css">
  <script src="{SUPABASE_JS_SRC}"></script>
  {config}
  <script src="/static/js/handoff.js" defer></script>
  <script src="/static/js/auth.js" defer></script>
</head>
<body>
  <div class="container">
    <div class="header">
      {self._render_logo()}
      <div class="brand-name">{brand}</div>
    </div>

    <button id="google-btn" class="auth-button" type="button">
      {_GOOGLE_ICON}
      Continue with Google
    </button>

    <div class="divider"><span>or</span></div>

    <div class="tabs">
      <div id="tab-email" class="{self.classes('tab', active=True)}">Email</div>
      <div id="tab-magic" class="tab">Magic Link</div>
    </div>

    <div id="email-tab" class="tab-content active">
      <div class="form-group">
        <label for="email">Email</label>
        <input type="email" id="email" placeholder="you@example.com" />
      </div>
      <div class="form-group">
        <label for="password">Password</label>
        <input type="password" id="password" placeholder="Your password" />
      </div>
      <button id="email-btn" class="auth-button primary" type="button">Sign In</button>
    </div>

    <div id="magic-tab" class="tab-content">
      <div class="form-group">
        <label for="magic-email">Email</label>
        <input type="email" id="magic-email" placeholder="you@example.com" />
      </div>
      <button id="magic-btn" class="auth-button primary" type="button">Send Magic Link</button>
    </div>

    <div id="error" class="error-message" role="alert"></div>
    <div id="success" class="success-message" role="status"></div>
  </div>
</body>
</html>"""

    def _render_logo(self) -> str:
        if not self.branding.logo_url:
            return ""
        return (
            f'<img src="{self.escape(self.branding.logo_url)}" '
            f'alt="{self.escape(self.branding.brand_name)}" class="logo" />'
        )
