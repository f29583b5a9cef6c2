# app/services/__init__.py
"""
Capa de servicios para lógica de negocio.
Los servicios orquestan validaciones, transformaciones y llamadas a repositorios.
"""

from .product_service import ProductService
from .product_import import ProductImportService, ProductStore, parse_products_csv, generate_template_csv
from .product_filter import FilterSpec, filter_products, build_filter_spec, low_stock
from .movement_service import MovementService
from .staff_service import StaffService

__all__ = [
    "ProductService",
    "ProductImportService",
    "ProductStore",
    "parse_products_csv",
    "generate_template_csv",
    "FilterSpec",
    "filter_products",
    "build_filter_spec",
    "low_stock",
    "MovementService",
    "StaffService",
]
