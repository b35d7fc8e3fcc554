"""Services layer: article generation, link handling and PBN publishing."""
