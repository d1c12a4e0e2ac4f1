"""Example resource family used by the conversion tests.

``v1`` is the hub; ``v1alpha1`` is a spoke where ``spec.newField`` was still
called ``spec.oldField`` and ``status.ready`` was a plain bool.
"""
