"""
                OrderFlow Availability Service

Menu availability and kitchen readiness for the multi-tenant
OrderFlow ordering platform: timezone-aware nightly sold-out resets
and prep-time / ready-time estimates.

Author: Khalil Bannouri
Version: 3.1.0
License: MIT
"""

__version__ = "3.1.0"
__author__ = "Khalil_Bannouri"
