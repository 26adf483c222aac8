"""oqs-wallet: seed-deterministic post-quantum keys via liboqs."""
