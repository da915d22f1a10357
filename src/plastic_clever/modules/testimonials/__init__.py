"""
Testimonials module - landing-page quotes.
"""

from plastic_clever.modules.testimonials.models import Testimonial

__all__ = ["Testimonial"]
