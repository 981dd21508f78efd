"""Color models and image output."""
