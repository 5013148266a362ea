"""
                        Services Module

Business logic for menu availability and kitchen readiness.

Services:
    - clock: tenant timezone resolution and local wall-clock reads
    - sold_out: timezone-aware nightly sold-out reset
    - prep_time: prep duration and ready time estimates
    - stores: tenant / menu item store contracts and the SQLAlchemy store
"""
