"""Custom validators and sanitizers"""

import re

# National ID: 8 to 12 digits
DNI_PATTERN = re.compile(r"^\d{8,12}$")

# 9 to 15 digits, optional + prefix
PHONE_PATTERN = re.compile(r"^\+?\d{9,15}$")

SKU_PATTERN = re.compile(r"^[A-Z0-9-]{3,50}$")

def validate_dni(dni: str) -> str:
    """Validate and normalize DNI"""
    dni = dni.strip()
    if not DNI_PATTERN.match(dni):
        raise ValueError("DNI debe contener solo números (8 a 12 dígitos)")
    return dni

def validate_phone_number(phone: str) -> str:
    """Validate and normalize phone number"""
    # Remove spaces, dashes and parentheses
    phone = re.sub(r"[\s\-()]", "", phone)

    if not PHONE_PATTERN.match(phone):
        raise ValueError("Teléfono inválido")

    return phone

def validate_sku(sku: str) -> str:
    sku = sku.strip().upper()
    if not SKU_PATTERN.match(sku):
        raise ValueError("SKU inválido")
    return sku

def normalize_text(text: str) -> str:
    """Collapse whitespace"""
    return " ".join(text.split())
