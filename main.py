from streamextract.CLI import cli


if __name__ == "__main__":
    # Example invocations:
    #   python main.py extract https://github.com/cdr/coder-cli/releases/latest/download/coder-cli-linux-amd64.tar.gz -o bin
    #   python main.py extract ./coder-cli-darwin-amd64.zip -o bin
    #   python main.py run -- ls -la
    cli()
