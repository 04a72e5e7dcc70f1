"""
Payment service layer
"""

from typing import Any, Dict, List

from ecommerce_api.core.config import settings
from ecommerce_api.models import PaymentMethod

class PaymentService:
    """Payment method descriptors for manual payments"""

    @staticmethod
    def get_payment_methods() -> List[Dict[str, Any]]:
        """
        Get available payment methods

        Returns:
            List of payment methods
        """
        return [
            {
                "id": PaymentMethod.BCP_CODE.value,
                "name": "Código BCP",
                "description": "Pago con código de operación del BCP",
                "instructions": "Realiza la transferencia y envía el código de operación",
            },
            {
                "id": PaymentMethod.BANK_TRANSFER.value,
                "name": "Transferencia Bancaria",
                "description": "Transferencia directa a cuenta bancaria",
                "bank_info": {
                    "bank": settings.PAYMENT_BANK_NAME,
                    "account_number": settings.PAYMENT_ACCOUNT_NUMBER,
                    "account_name": settings.PAYMENT_ACCOUNT_NAME,
                },
            },
        ]
