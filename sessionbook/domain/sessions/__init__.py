"""Sessions domain - Dated calendar sessions"""
