"""Social reading backend: authentication, reading analytics and recommendations."""
