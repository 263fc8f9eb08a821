"""pygls server exposing the extension to the editor host."""
