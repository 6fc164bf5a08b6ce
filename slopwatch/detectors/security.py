"""
Security detector.
"""

from ..claims.models import ClaimDomain
from .base import Detector, Signature


class SecurityDetector(Detector):
    """Verifies claims about sanitization, auth, CSRF, secrets and injection."""

    name = "security"
    domain = ClaimDomain.SECURITY

    subcategories = {
        "csrf": ("csrf", "xsrf"),
        "injection": ("injection", "sql", "parameteri"),
        "sanitization": ("sanitiz", "xss", "escap", "input"),
        "auth": ("auth", "login", "password", "session", "token", "permission"),
        "secrets": ("secret", "credential", "api key", "env"),
        "hardening": ("rate limit", "header", "helmet", "cors", "harden"),
    }

    signatures = (
        Signature("csrf_protection", r"(?:csrf|xsrf)[-_]?(?:token|protection)?|csurf", "csrf", 0.9,
                  "CSRF protection"),
        Signature("parameterized_queries", r"\b(?:execute|query|prepare)\s*\([^)]*(?:\?|\$\d|%s|:\w+)", "injection", 0.8,
                  "Parameterized queries"),
        Signature("orm_escaping", r"\b(?:escape_string|escapeId|sqlstring|bindparam)\b", "injection", 0.7,
                  "Query escaping helpers"),
        Signature("sanitizers", r"\b(?:sanitize\w*|DOMPurify|escape(?:Html)?|bleach\.clean|encodeURIComponent)\b", "sanitization", 0.8,
                  "Sanitization and encoding"),
        Signature("safe_dom", r"\.textContent\s*=|\.innerText\s*=", "sanitization", 0.7,
                  "Safe DOM writes"),
        Signature("password_hashing", r"\b(?:bcrypt|argon2|scrypt|pbkdf2|hashpw|hashSync)\b", "auth", 0.9,
                  "Password hashing"),
        Signature("auth_checks", r"\b(?:authenticate|authorize|isAuthenticated|requireAuth|login_required|verify(?:Token|_token)|jwt\.\w+)\b", "auth", 0.8,
                  "Authentication checks"),
        Signature("env_secrets", r"process\.env\.\w+|os\.environ(?:\.get)?\s*[\[(]|getenv\s*\(", "secrets", 0.7,
                  "Secrets read from environment"),
        Signature("rate_limiting", r"\b(?:rateLimit|rate_limit|RateLimiter|limiter)\b", "hardening", 0.8,
                  "Rate limiting"),
        Signature("security_headers", r"\bhelmet\s*\(|Content-Security-Policy|Strict-Transport-Security|X-Frame-Options", "hardening", 0.8,
                  "Security headers"),
    )
