"""
Business logic for the URL shortener.

- url_service / code_generator / url_registry: creating and managing short URLs
- redirect_service / click_recorder / click_log / stats_service: the redirect
  path and its analytics
- auth_service / oauth / session_store: accounts and sign-in
"""
