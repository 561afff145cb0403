"""
Dental Marketplace

A FastAPI-based marketplace backend connecting patients, dental clinics and
regulators: AI treatment plans, competitive clinic offers, appointment
scheduling and regional analytics.
"""

__version__ = "1.0.0"
