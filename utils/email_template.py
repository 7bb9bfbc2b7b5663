from __future__ import annotations

import os
from html import escape


OTP_SUBJECT = "Your Verification Code"


def _public_base_url() -> str:
    return os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")


def tracking_url(tracking_id: str) -> str:
    return f"{_public_base_url()}/api/track/{tracking_id}"


def render_text(code: str, *, expires_minutes: int) -> str:
    return (
        f"Your verification code is: {code}\n\n"
        f"This code expires in {expires_minutes} minutes.\n"
        "If you did not request this code, you can ignore this email.\n"
    )


def render_html(*, recipient: str, code: str, tracking_id: str, expires_minutes: int) -> str:
    """
    Verification email body.

    The hidden 1x1 image at the end is the read receipt: fetching it hits
    GET /api/track/<tracking_id>.
    """
    return f"""
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <style>
    body {{
      font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
      line-height: 1.6;
      color: #333;
      margin: 0;
      padding: 0;
      background-color: #f4f4f4;
    }}
    .container {{
      max-width: 600px;
      margin: 20px auto;
      background-color: #ffffff;
      border-radius: 10px;
      overflow: hidden;
      box-shadow: 0 4px 6px rgba(0, 0, 0, 0.1);
    }}
    .header {{
      background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
      color: white;
      padding: 30px;
      text-align: center;
    }}
    .content {{
      padding: 30px;
    }}
    .code-box {{
      background-color: #f8f9fa;
      border: 2px dashed #667eea;
      padding: 20px;
      margin: 30px 0;
      border-radius: 8px;
      text-align: center;
    }}
    .code {{
      font-size: 48px;
      font-weight: bold;
      color: #667eea;
      letter-spacing: 8px;
      font-family: 'Courier New', monospace;
    }}
    .footer {{
      background-color: #f8f9fa;
      padding: 20px;
      text-align: center;
      font-size: 14px;
      color: #666;
      border-top: 1px solid #e9ecef;
    }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>Verification Code</h1>
      <p>Authentication System</p>
    </div>
    <div class="content">
      <p>Use the code below to complete your verification:</p>
      <div class="code-box">
        <div class="code">{escape(code)}</div>
        <div style="color:#666;font-size:14px">This code expires in {expires_minutes} minutes</div>
      </div>
      <p><strong>For your security:</strong></p>
      <ul>
        <li>Do not share this code with anyone</li>
        <li>We will never ask for this code by phone or email</li>
        <li>If you did not request this code, ignore this email</li>
      </ul>
      <p style="margin-top:30px;color:#666;font-size:14px">
        <strong>Recipient:</strong> {escape(recipient)}
      </p>
    </div>
    <div class="footer">
      <p>This is an automated email, please do not reply</p>
    </div>
  </div>
  <img src="{escape(tracking_url(tracking_id))}" width="1" height="1" style="display:none" alt="" />
</body>
</html>
"""
