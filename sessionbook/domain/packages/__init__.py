"""Packages domain - Prepaid session bundles"""
