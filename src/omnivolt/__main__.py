from omnivolt.cli import top_level

if __name__ == "__main__":
    top_level()
