from enum import Enum


class PropertyType(str, Enum):
    APARTMENT = "APARTMENT"
    SHOP = "SHOP"
    OFFICE = "OFFICE"
