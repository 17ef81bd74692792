"""ArtisanBazaar marketplace client core."""
