"""Domain packages: clients, scheduling, sessions, packages, payments"""
