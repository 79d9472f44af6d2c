"""Page level comparators and the data model they share."""
