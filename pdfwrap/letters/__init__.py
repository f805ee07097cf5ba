"""Letter text package.

Resolves ``[[FIELD]]`` placeholders against ``tstdletterfields`` and
substitutes ``#NAME#`` placeholders from caller-supplied values.
"""
