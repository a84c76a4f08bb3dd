import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M


class QRService:

    def __init__(self, box_size: int = 10, border: int = 1):
        self.box_size = box_size
        self.border = border

    def png(self, data: str) -> bytes:

        qr = qrcode.QRCode(
            error_correction=ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(data)
        qr.make(fit=True)

        buf = io.BytesIO()
        qr.make_image().save(buf)
        return buf.getvalue()

_qr_service = None

def get_qr_service() -> QRService:

    global _qr_service
    if _qr_service is None:
        _qr_service = QRService()

    return _qr_service
