"""
Checker package for the Email Authentication Checker.

Provides the DNS resolver backends, the SPF, DMARC and DKIM assessors,
and the scan engine that combines them into a report.
"""
