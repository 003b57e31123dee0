"""FlareCare reminder service: due-computation and Web Push delivery."""
