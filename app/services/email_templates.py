"""Email templates rendered by plain string substitution.

Each template declares the exact parameter set it accepts. Rendering with an
unknown template name raises ``KeyError``; a missing or unexpected parameter
raises ``ValueError``. Both are programming errors, not runtime conditions.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from string import Template
from typing import Dict, FrozenSet, Mapping


@dataclass(frozen=True, slots=True)
class EmailTemplate:
    subject: str
    params: FrozenSet[str]
    html_body: Template
    text_body: Template


@dataclass(frozen=True, slots=True)
class RenderedEmail:
    subject: str
    html_body: str
    text_body: str


_HTML_LAYOUT = """
<html>
    <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <div style="background-color: #0f172a; padding: 30px; border-radius: 10px; text-align: center;">
            <h1 style="color: #93c5fd; margin: 0;">$$title</h1>
        </div>
        <div style="padding: 30px 0;">
            $$content
        </div>
        <div style="border-top: 1px solid #e2e8f0; padding-top: 20px; text-align: center;">
            <p style="color: #94a3b8; font-size: 12px;">
                You are receiving this email because an action was requested for your account.
            </p>
        </div>
    </body>
</html>
"""


def _html(title: str, content: str) -> Template:
    # Layout slots are filled before the Template is built; only the
    # per-template parameters remain as placeholders.
    layout = _HTML_LAYOUT.replace("$$title", title).replace("$$content", content)
    return Template(layout)


def _button(url_param: str, label: str) -> str:
    return f"""
            <div style="text-align: center; margin: 30px 0;">
                <a href="${{{url_param}}}"
                   style="background-color: #3b82f6; color: white; padding: 15px 30px;
                          text-decoration: none; border-radius: 5px; display: inline-block;
                          font-weight: bold;">
                    {label}
                </a>
            </div>"""


TEMPLATES: Dict[str, EmailTemplate] = {
    "verification": EmailTemplate(
        subject="Verify Your Email Address",
        params=frozenset({"username", "verification_url", "expires_in"}),
        html_body=_html(
            "Verify your email",
            """<h2 style="color: #1e293b;">Hello ${username},</h2>
            <p style="color: #475569; line-height: 1.6;">
                Thanks for signing up. Please confirm your email address by clicking the button below.
            </p>"""
            + _button("verification_url", "Verify Email")
            + """
            <p style="color: #64748b; font-size: 14px;">This link expires in ${expires_in}.</p>
            <p style="color: #64748b; font-size: 14px;">
                If you did not create an account, you can ignore this email.
            </p>""",
        ),
        text_body=Template(
            "Hello ${username},\n\n"
            "Thanks for signing up. Please confirm your email address by opening the link below:\n"
            "${verification_url}\n\n"
            "This link expires in ${expires_in}.\n\n"
            "If you did not create an account, you can ignore this email.\n"
        ),
    ),
    "password_reset": EmailTemplate(
        subject="Reset Your Password",
        params=frozenset({"username", "reset_url"}),
        html_body=_html(
            "Reset your password",
            """<h2 style="color: #1e293b;">Hello ${username},</h2>
            <p style="color: #475569; line-height: 1.6;">
                We received a request to reset your password. Click the button below to choose a new one.
            </p>"""
            + _button("reset_url", "Reset Password")
            + """
            <p style="color: #64748b; font-size: 14px;">
                If you did not request a password reset, you can ignore this email.
            </p>""",
        ),
        text_body=Template(
            "Hello ${username},\n\n"
            "We received a request to reset your password. Open the link below to choose a new one:\n"
            "${reset_url}\n\n"
            "If you did not request a password reset, you can ignore this email.\n"
        ),
    ),
}


def render(name: str, params: Mapping[str, str]) -> RenderedEmail:
    """Render template ``name`` with exactly its declared parameters."""
    template = TEMPLATES[name]
    provided = set(params)
    missing = template.params - provided
    if missing:
        raise ValueError(f"Template {name!r} is missing parameters: {sorted(missing)}")
    unexpected = provided - template.params
    if unexpected:
        raise ValueError(f"Template {name!r} got unexpected parameters: {sorted(unexpected)}")

    escaped = {key: html.escape(str(value), quote=True) for key, value in params.items()}
    return RenderedEmail(
        subject=template.subject,
        html_body=template.html_body.substitute(escaped),
        text_body=template.text_body.substitute(params),
    )
