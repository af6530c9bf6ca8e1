"""Payments domain - Payments, pricing and allocation"""
