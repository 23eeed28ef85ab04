"""
Flask Blueprints Package

- contact: contact form API under ``/api/contact``, registered by
  ``init_contact_api`` from the application factory.
"""
