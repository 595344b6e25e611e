"""Cafe point-of-sale cashier terminal"""
