"""
Services Module
Pipeline logic: classification, text extraction, lookup fallback,
product normalization, persistence and scan orchestration.

Services are wired together by foodscan.main.FoodScanApp.
"""
