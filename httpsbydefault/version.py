VERSION = "0.5.0"
HTTPSBYDEFAULT = "httpsbydefault " + VERSION

if __name__ == "__main__":  # pragma: no cover
    print(VERSION)
