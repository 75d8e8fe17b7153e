"""Data models for the receipt and quotation toolkit."""

from .listing import Page, PaginationParams, SortDirection
from .receipt import (
    AdvertisementSelection,
    ReceiptDetails,
    ReceiptStats,
    ReceiptStatus,
    ServiceFlags,
    StoredReceipt,
)
from .quotation import ClientInfo, CompanyInfo, QuotationItem, QuotationStructure, ScopeItem
from .tent import Booking, BookingStatus, GridPosition, Tent, TentStatus

__all__ = [
    "Page",
    "PaginationParams",
    "SortDirection",
    "AdvertisementSelection",
    "ReceiptDetails",
    "ReceiptStats",
    "ReceiptStatus",
    "ServiceFlags",
    "StoredReceipt",
    "ClientInfo",
    "CompanyInfo",
    "QuotationItem",
    "QuotationStructure",
    "ScopeItem",
    "Booking",
    "BookingStatus",
    "GridPosition",
    "Tent",
    "TentStatus",
]
