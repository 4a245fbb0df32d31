"""
Claims Adjudication Engine
==========================

Insurance claims adjudication over layered benefit configurations.

Given a submitted claim and a member's scheme, corporate, grade and rider
configuration, the engine decides how much of the claim is payable, who
bears the rest, and records an auditable decision trail.
"""

__version__ = "0.1.0"
__author__ = "Claims Adjudication"
