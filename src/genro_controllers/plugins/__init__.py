"""Optional collaborators for Genro Controllers.

Plugins are not imported by the core; import them explicitly::

    from genro_controllers.plugins.auth import TagAuthorizer
"""
