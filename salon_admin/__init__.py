"""
Salon admin front end: appointment CSV import wizard and its supporting app code.
"""
