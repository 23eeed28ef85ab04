"""
Configuration Package

- settings.py: business hours, retry policy, feature flags and the Flask
  configuration classes, all loaded from the environment (python-dotenv).
"""
