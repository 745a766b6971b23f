"""
Pytest configuration for the module catalog
"""

import os
import sys

import django

# test_settings lives at the project root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'test_settings')


def pytest_configure():
    django.setup()
