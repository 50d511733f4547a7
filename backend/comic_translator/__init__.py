"""Comic page text extraction and translation service"""
