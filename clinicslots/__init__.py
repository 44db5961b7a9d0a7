"""
clinicslots - appointment scheduling and conflict detection for clinics.
"""

__version__ = "0.1.0"
