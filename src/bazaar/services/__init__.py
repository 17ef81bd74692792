"""Domain services: queries and mutations for marketplace resources."""
