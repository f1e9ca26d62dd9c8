"""UPI payment links and QR codes for the deposit page"""

import base64
from decimal import Decimal
from io import BytesIO
from typing import Optional, Union
from urllib.parse import quote

import qrcode
import qrcode.constants
from qrcode.main import QRCode

from astex.core.config import settings


def build_upi_link(
    upi_id: str,
    merchant_name: str,
    amount: Optional[Union[Decimal, str]] = None,
    currency: str = "INR",
) -> str:
    """upi://pay deep link understood by UPI apps"""
    link = f"upi://pay?pa={quote(upi_id, safe='@.')}&pn={quote(merchant_name)}"
    if amount is not None:
        amount = Decimal(str(amount)).quantize(Decimal("0.01"))
        link += f"&am={amount}"
    return link + f"&cu={currency}"


def generate_qr_png(data: str, box_size: Optional[int] = None, border: int = 4) -> str:
    """Render ``data`` as a PNG QR code, base64 encoded"""
    qr = QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size or settings.QR_BOX_SIZE,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffered = BytesIO()
    img.save(buffered, format="PNG")
    return base64.b64encode(buffered.getvalue()).decode()
