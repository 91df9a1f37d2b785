# mobicoop/__init__.py
"""
Mobicoop: ядро создания объявлений о совместных поездках.
"""

__version__ = "1.0.0"
