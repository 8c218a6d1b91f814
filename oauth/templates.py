"""HTML templates for the consent screen and the callback relay page.

The render functions are pure: they map request parameters to a page body
and never touch the code or token stores.

Theme colors:
- Background: #1A1A1A (near black)
- Card: #2A2A2A
- Allow: #4CAF50, Deny: #F44336
- Secondary text: #B0B0B0
"""

import html
import json
from typing import Optional
from urllib.parse import urlencode

from oauth.providers import Provider

# ============== Consent Page ==============

CONSENT_PAGE = """
<!DOCTYPE html>
<html>
<head>
    <title>OAuth Consent - {provider_name}</title>
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Arial, sans-serif;
               background: #1A1A1A; color: white;
               min-height: 100vh; display: flex; align-items: center; justify-content: center; margin: 0; }}
        .consent-box {{ background: #2A2A2A; padding: 32px; border-radius: 8px;
                       width: 100%; max-width: 400px; text-align: center; }}
        .provider-logo {{ font-size: 48px; margin-bottom: 16px; }}
        h2 {{ margin: 0 0 8px; font-weight: 600; }}
        p {{ color: #B0B0B0; margin: 0 0 12px; }}
        ul {{ text-align: left; margin: 16px 0; color: #B0B0B0; }}
        .buttons {{ display: flex; gap: 12px; margin-top: 24px; }}
        button {{ flex: 1; padding: 12px; border: none; border-radius: 4px; font-size: 15px;
                 font-weight: 600; cursor: pointer; color: white; }}
        .allow {{ background: #4CAF50; }}
        .deny {{ background: #F44336; }}
    </style>
</head>
<body>
    <div class="consent-box">
        <div class="provider-logo">&#128274;</div>
        <h2>OAuth Authorization</h2>
        <p>Mock {provider_name} OAuth Provider</p>
        <p>Playwright Hub would like to:</p>
        <ul>
            <li>Access your profile information</li>
            <li>Read your email address</li>
        </ul>
        <div class="buttons">
            <button class="deny" id="deny" onclick="deny()">Deny</button>
            <button class="allow" id="allow" onclick="allow()">Allow</button>
        </div>
    </div>
    <script>
        function allow() {{
            window.location.href = {allow_url};
        }}
        function deny() {{
            window.location.href = {deny_url};
        }}
    </script>
</body>
</html>
"""

# ============== Callback Relay Pages ==============

CALLBACK_ERROR_PAGE = """
<!DOCTYPE html>
<html>
<head><title>OAuth Error</title></head>
<body>
    <h1>OAuth Error</h1>
    <p>Error: {error}</p>
    <a href="{resume_url}">Return to OAuth Challenge</a>
</body>
</html>
"""

CALLBACK_RELAY_PAGE = """
<!DOCTYPE html>
<html>
<head>
    <title>Redirecting...</title>
    <script>
        // Popup flow: hand the code to the opener and close
        if (window.opener) {{
            window.opener.postMessage({message}, "*");
            window.close();
        }} else {{
            window.location.href = {redirect_url};
        }}
    </script>
</head>
<body>
    <p>Redirecting...</p>
</body>
</html>
"""


def _js_string(value) -> str:
    """Encode a value as a JavaScript literal safe to embed in a <script> block."""
    return json.dumps(value).replace("</", "<\\/")


def append_query(url: str, params: dict) -> str:
    """Append query parameters to a URL that may already carry some."""
    query = urlencode({key: value for key, value in params.items() if value})
    if not query:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"


def consent_urls(redirect_uri: str, code: str, state: Optional[str] = None) -> tuple[str, str]:
    """Return the (allow, deny) navigation targets for a consent page."""
    allow_url = append_query(redirect_uri, {"code": code, "state": state})
    deny_url = append_query(redirect_uri, {"error": "access_denied", "state": state})
    return allow_url, deny_url


def render_consent_page(
    provider: Provider,
    code: str,
    redirect_uri: str,
    state: Optional[str] = None,
) -> str:
    """Render the consent screen.

    Allow navigates to redirect_uri with the code (and state). Deny navigates
    there with error=access_denied; the issued code is simply left to expire.
    """
    allow_url, deny_url = consent_urls(redirect_uri, code, state)
    return CONSENT_PAGE.format(
        provider_name=html.escape(provider.name),
        allow_url=_js_string(allow_url),
        deny_url=_js_string(deny_url),
    )


def render_callback_page(
    code: Optional[str],
    state: Optional[str],
    error: Optional[str],
    resume_url: str,
) -> str:
    """Render the page the provider redirects back to.

    Shows an error page when error is set. Otherwise relays {code, state}
    to window.opener for popups, or redirects to resume_url for the
    redirect flow.
    """
    if error:
        return CALLBACK_ERROR_PAGE.format(
            error=html.escape(error),
            resume_url=html.escape(resume_url, quote=True),
        )

    return CALLBACK_RELAY_PAGE.format(
        message=_js_string({"code": code or "", "state": state or ""}),
        redirect_url=_js_string(append_query(resume_url, {"code": code, "state": state})),
    )
