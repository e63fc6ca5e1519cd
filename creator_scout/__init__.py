"""Creator Scout

YouTube channel lookup, related channel discovery and AI content ideas.
"""
