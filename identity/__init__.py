"""Identity service: account registration, login and JWT issuance."""
