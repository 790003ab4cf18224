from mcp_server_vibscan import main

main()
