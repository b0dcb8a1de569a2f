"""Identity layer: credentials, password hashing, tokens and the account security engine."""
