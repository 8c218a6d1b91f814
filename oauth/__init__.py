"""Mock OAuth2 authorization server package."""
