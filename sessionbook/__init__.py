"""Sessionbook - recurring appointment scheduling and payment allocation"""
